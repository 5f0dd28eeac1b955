"""Sky Booking core - shared booking DTOs."""
