"""Pure domain logic for prflow (markup, text transforms, records)."""
