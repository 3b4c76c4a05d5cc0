"""
Ingestion — document loading, chunking, and embedding into the vector store.

This module is responsible for the ETL-like pipeline that converts PDF
documents into embedded chunks stored in a vector database.
"""
