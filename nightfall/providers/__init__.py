"""External provider interfaces."""
