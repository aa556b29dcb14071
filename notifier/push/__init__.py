"""Provider credentials: signed bearer assertions and service-account loading."""
