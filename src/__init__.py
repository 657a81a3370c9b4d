"""Document & Schedule Extraction Engine.

Turns uploaded scans, PDFs and spreadsheets of passports, visas,
employment contracts and weekly work rotas into typed records, using
OpenCV preprocessing, Tesseract OCR with a remote OCR fallback, and
rule-based field and schedule extraction.
"""
