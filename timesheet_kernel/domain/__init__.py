"""Pure domain types: clock, identity, lifecycle and DTOs."""
