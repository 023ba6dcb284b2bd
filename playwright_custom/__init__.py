"""Playwright-side helpers: in-page capture of the live DOM and overlay painting."""
