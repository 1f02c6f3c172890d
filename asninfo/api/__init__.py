"""HTTP lookup API."""
