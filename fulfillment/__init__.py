"""Order fulfillment and payment-integrity service."""
