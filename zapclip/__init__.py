"""Clip acquisition service for connected Twitch broadcasters."""
