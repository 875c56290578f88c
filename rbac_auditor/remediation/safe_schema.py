"""safe transaction builder import file schema (version 1.0)"""

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from eth_utils import to_checksum_address

from ..utils.validation import is_valid_address


class _SafeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MethodInput(_SafeModel):
    internal_type: str = Field(..., alias="internalType")
    name: str
    type: str


class ContractMethod(_SafeModel):
    """abi fragment the safe ui uses to render and encode the call"""

    inputs: List[MethodInput]
    name: str
    payable: Literal[False] = False


class SafeTransaction(_SafeModel):
    to: str = Field(..., description="Checksummed target contract.")
    value: Literal["0"] = "0"
    # safe encodes from contract_method + contract_inputs_values when data is null
    data: Optional[str] = None
    contract_method: ContractMethod = Field(..., alias="contractMethod")
    contract_inputs_values: Dict[str, str] = Field(..., alias="contractInputsValues")

    @field_validator("to")
    @classmethod
    def _checksum_to(cls, value: str) -> str:
        if not is_valid_address(value):
            raise ValueError(f"invalid target address {value!r}")
        return to_checksum_address(value)


class SafeMetadata(_SafeModel):
    name: str
    description: str = ""
    tx_builder_version: str = Field(..., alias="txBuilderVersion")
    # filled in by the safe ui on import
    created_from_safe_address: str = Field("", alias="createdFromSafeAddress")
    created_from_owner_address: str = Field("", alias="createdFromOwnerAddress")
    checksum: str = ""


class SafeBatchFile(_SafeModel):
    version: str = "1.0"
    chain_id: str = Field(..., alias="chainId")
    created_at: int = Field(..., alias="createdAt")
    meta: SafeMetadata
    transactions: List[SafeTransaction]

    def to_dict(self) -> Dict:
        return self.model_dump(by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
