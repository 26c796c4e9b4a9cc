"""ProHub marketplace backend — co-pay eligibility and service content versioning."""
