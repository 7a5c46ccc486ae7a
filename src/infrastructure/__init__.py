"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain chat model providers, SQLite.
Depends on domain/ only (implements ports). Never imported by application/.
"""
