"""Shared cross-cutting helpers: logging setup and tracing. No business logic."""
