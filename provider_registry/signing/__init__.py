"""Signing — lookup of the publisher's public GPG key."""
