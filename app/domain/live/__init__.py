"""
Live session domain logic.

Includes:
- session: Scheduling, booking and refunds, ratings, stream lifecycle,
  engagement and post-session analytics.
"""
