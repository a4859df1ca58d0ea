"""Tests for the AD2USB integration."""
