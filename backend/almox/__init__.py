"""Almoxarifado document code sequencing backend."""
