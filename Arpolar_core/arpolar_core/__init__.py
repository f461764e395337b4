"""Nucleo do organograma Arpolar: arvore, contratos e ocorrencias."""

__version__ = "0.1.0"
