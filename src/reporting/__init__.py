"""SARFI reporting — weight exports, import templates, SARFI reports."""
