"""
Assistant Module

Speech clean-up, text-to-sign sequencing, chat replies and CSV dataset
processing on top of a pluggable LLM provider.
"""
