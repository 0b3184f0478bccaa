"""Tests for the persona retention backend."""
