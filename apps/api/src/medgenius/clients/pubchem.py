"""PubChem PUG REST client for compound lookups."""

import logging
from urllib.parse import quote

import httpx

from medgenius.core.errors import CompoundNotFoundError, NetworkError
from medgenius.core.models import Compound

logger = logging.getLogger(__name__)

PROPERTIES = "MolecularFormula,MolecularWeight,IUPACName,CanonicalSMILES"


class PubChemClient:
    """
    Look up compound identifiers and properties by name.

    Returns the CID, formula, molecular weight, IUPAC name, canonical
    SMILES and a URL for the rendered 2-D structure image.
    """

    source = "pubchem"

    def __init__(
        self,
        base_url: str = "https://pubchem.ncbi.nlm.nih.gov/rest/pug",
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=30.0)

    def image_url(self, cid: int) -> str:
        """URL of the rendered 2-D structure for a CID."""
        return f"{self.base_url}/compound/cid/{cid}/PNG"

    async def get_compound(self, name: str) -> Compound:
        """
        Fetch compound properties by name.

        Raises:
            CompoundNotFoundError: PubChem has no compound by that name
            NetworkError: the request failed or the body was malformed
        """
        name = name.strip()
        if not name:
            raise ValueError("Compound name is required")

        url = f"{self.base_url}/compound/name/{quote(name, safe='')}/property/{PROPERTIES}/JSON"

        try:
            response = await self._client.get(url)
            if response.status_code == 404:
                raise CompoundNotFoundError(name)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"PubChem error for {name!r}: {e.response.status_code}")
            raise NetworkError(f"PubChem error: {e.response.status_code}", self.source)
        except httpx.HTTPError as e:
            logger.warning(f"PubChem request failed for {name!r}: {e}")
            raise NetworkError("Cannot reach PubChem", self.source)
        except ValueError:
            raise NetworkError("PubChem returned a non-JSON body", self.source)

        try:
            props = data["PropertyTable"]["Properties"][0]
            cid = int(props["CID"])
            weight = props.get("MolecularWeight")
            weight = float(weight) if weight is not None else None
        except (KeyError, IndexError, TypeError, ValueError):
            raise NetworkError("PubChem response is missing compound properties", self.source)

        return Compound(
            cid=cid,
            name=name,
            molecular_formula=props.get("MolecularFormula"),
            molecular_weight=weight,
            iupac_name=props.get("IUPACName"),
            # Newer PubChem responses name this field ConnectivitySMILES
            canonical_smiles=props.get("CanonicalSMILES") or props.get("ConnectivitySMILES"),
            image_url=self.image_url(cid),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
