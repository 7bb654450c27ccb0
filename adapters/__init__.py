"""Collaborator implementations for the pet health engine."""
