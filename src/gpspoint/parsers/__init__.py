"""Readers: tokenizer, tag parser and record builder."""
