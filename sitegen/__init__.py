"""Structured LLM generation of website content.

Turns a short business description into validated site content records
(foundation, about, contact, ...) through concurrent model calls.
"""

__version__ = "0.1.0"
