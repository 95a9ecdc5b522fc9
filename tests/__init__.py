"""Test suite for pagesettle."""
