"""Sky Booking API - flight booking saga service."""
