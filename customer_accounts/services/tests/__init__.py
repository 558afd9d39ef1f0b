"""Tests for :mod:`customer_accounts.services`."""
