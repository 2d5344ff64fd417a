"""
Bookings Domain

Lesson bookings and their governed lifecycle:
- state_machine: the legal transition table (pure)
- expiry: stale pending bookings are declined lazily when read
- lifecycle: booking creation + audit entries projected into one timeline
- repository / service / router: persistence and HTTP surface

Booking.status is only ever written after state_machine.transition() accepts
the move, through a conditional update guarded by the expected current state.
"""
