"""Core of the bot: event types, logging, errors, dispatch and wiring."""
