"""Lending position risk analytics and error classification."""
