# Routes package init
"""
Kadzai Backend — API Routes Package
====================================

Route Inventory:
    - auth.py:       POST /api/auth/login, GET /api/auth/me
    - bookings.py:   /api/bookings (public create/lookups, admin list/update/delete)
    - trips.py:      GET /api/trips/user[/{trip_id}] (public), /api/trips (admin CRUD)
    - bus_types.py:  /api/bus-types (admin CRUD)
    - buses.py:      /api/buses (admin CRUD, seats generated from the layout)
    - users.py:      /api/users (admin CRUD for operator accounts)
    - paystack.py:   /api/paystack/initialize, /verify, /webhook
    - email.py:      POST /api/send-email, POST /api/contact
    - health.py:     GET /health

Routes stay thin: parse the request, call one service, shape the response.
"""
