"""Trading card identification: match scanned card fields against the catalog."""
