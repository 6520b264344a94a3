"""Port interfaces for the DRA driver."""
