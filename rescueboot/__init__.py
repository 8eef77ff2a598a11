"""Boot-time system setup for the disaster-recovery rescue system."""
