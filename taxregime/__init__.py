"""
taxregime — Old vs New regime income-tax comparison for Indian individual taxpayers.

Public entry points:
    from taxregime.evaluator.tax_engine import compute, safe_compute
    from taxregime.intake.residency import classify_residency
    from taxregime.intake.ledger import CapitalGainsLedger   # edits STCG/LTCG lists, yields CapitalGainsInputs
"""
__version__ = "0.1.0"
