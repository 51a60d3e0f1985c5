"""Input parsing, normalization and publishing for the ASC registry pipeline"""
