# Services package init
"""
Kadzai Backend — Services Layer
================================

Service Inventory:
    - AuthService:       bcrypt password checks, session tokens
    - BookingService:    payment checks, lookups, creation with seat allocation, admin edits
    - TripService:       public trip search and detail
    - BusTypeService:    admin bus-type CRUD
    - PaymentGateway:    abstract gateway contract
    - PaystackService:   Paystack REST client (initialize, verify, signatures)
    - WebhookService:    charge.success → booking
    - EmailService:      SMTP booking confirmations and contact messages

Each service is a stateless class with a module-level singleton; database
sessions are passed in per call.
"""
