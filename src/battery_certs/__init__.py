"""
battery_certs — batch manager for vehicle battery health certificates.

Collects certificate records from manual entry and from PDF field
extraction, validates them, and renders one PDF per certificate through a
remote service, tolerating per-item failures along the way.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
