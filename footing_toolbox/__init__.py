"""Footing Toolbox: pad footing bearing pressure calculator."""
