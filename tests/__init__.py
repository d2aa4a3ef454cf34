"""Test suite for tagfree."""
