"""Domain packages for the Schedle core."""
