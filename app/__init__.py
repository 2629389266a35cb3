"""Smart Organizer application package."""
