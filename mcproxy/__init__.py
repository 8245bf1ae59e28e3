"""Scanner, parser and rule model for the configuration commands of an IGMP/MLD multicast proxy."""

__version__ = "0.1.0"