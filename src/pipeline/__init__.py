"""Pipeline modules: orchestration over the generation and variant layers.

  variants: content record -> one reviewed variant per target channel
"""
