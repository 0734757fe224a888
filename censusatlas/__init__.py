"""
Census Atlas — data acquisition, identifier reconciliation and colourisation
engine for US choropleth maps.
"""

__version__ = "1.0.0"
