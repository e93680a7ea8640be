"""Test-attempt lifecycle and score visibility engine."""
