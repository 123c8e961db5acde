"""Core design engine: measurement, feature model, interaction, pricing and persistence."""
