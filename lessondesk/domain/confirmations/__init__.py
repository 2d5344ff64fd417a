"""Idempotent booking creation from a human-confirmed automation draft"""
