"""Storefront services: Supabase repositories, money helpers and settings."""
