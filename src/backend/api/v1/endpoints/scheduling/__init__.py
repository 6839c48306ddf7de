"""Recurring job endpoints: templates, schedules, generated instances."""
