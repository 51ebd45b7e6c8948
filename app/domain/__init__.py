"""
Domain layer containing core business logic and domain services.

Submodules:
- account: Registration, login, profiles, token balances and preferences.
- catalog: Token packages and purchases.
- live: Fitness sessions, bookings, streams and analytics.
- utils: Caller identity and ID generation.
"""
