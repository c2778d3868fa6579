"""Bookings domain - request finalization, slot claims and lifecycle"""
