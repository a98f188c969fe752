"""Paid booking adapter: validates bookings and creates them via x402."""
