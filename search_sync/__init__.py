"""Record preparation and index synchronization for the search engine."""
