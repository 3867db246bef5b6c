"""Transaction history importers and row normalization."""
