"""External data clients - PubChem compounds and openFDA FAERS statistics."""

from medgenius.clients.faers import FAERSClient
from medgenius.clients.pubchem import PubChemClient

__all__ = ["FAERSClient", "PubChemClient"]
