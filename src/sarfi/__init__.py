"""SARFI Weighting & Aggregation Engine.

Modules
───────
  weights    — customer counts → normalized weight factors (per profile)
  classifier — voltage-dip events → nested SARFI buckets
  aggregator — per-meter data points + weighted system summary
  importer   — bulk customer-count import with per-row validation
  profiles   — profile CRUD and single-entry weight edits
  engine     — wires store, event source and lanes together
  cli        — argparse entry-point
"""
