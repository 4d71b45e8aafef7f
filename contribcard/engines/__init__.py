"""Engines: long-running collection work built on the core and DAO layers."""
