"""Provider domain - scheduling policy resolution and updates"""
