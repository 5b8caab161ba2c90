"""Ad targeting service.

Register advertisements with nested audience-targeting conditions and list
the advertisements that are active now for a given audience.
"""

__version__ = "0.1.0"
