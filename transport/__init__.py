"""Messaging provider transports."""
