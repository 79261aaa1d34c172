"""Provider adapters and the trip planning pipeline that composes them."""
