"""Festreg: fest registration, team formation and round progression backend."""
