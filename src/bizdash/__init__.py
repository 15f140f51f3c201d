"""bizdash: dashboard reporting API for small-business accounting and inventory."""
