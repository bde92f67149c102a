"""HTTP host surface for Helldrafters sessions."""
