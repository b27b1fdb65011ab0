from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RoleName = Literal["host", "router"]


class SystemRec(BaseModel):
    """System record as declared inside a subnet block."""

    model_config = ConfigDict(extra="ignore")
    name: str
    address: str
    role: RoleName = "host"

    @field_validator("address", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return str(v).strip()

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, v):
        if v is None:
            return "host"
        if isinstance(v, bool):
            return "router" if v else "host"
        return str(v).strip().lower()


class SubnetRec(BaseModel):
    """Subnet record with its member systems."""

    model_config = ConfigDict(extra="ignore")
    cidr: str
    systems: list[SystemRec] = Field(default_factory=list)

    @field_validator("cidr", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return str(v).strip()


class ConnectionRec(BaseModel):
    """Connection record between two systems, referenced by name."""

    model_config = ConfigDict(extra="ignore")
    between: tuple[str, str]
    weight: int | None = None

    @field_validator("between", mode="before")
    @classmethod
    def _coerce_between(cls, v):
        if isinstance(v, list | tuple) and len(v) == 2:
            a, b = v
        elif isinstance(v, str):
            # allow "a,b"
            parts = [p.strip() for p in v.split(",")]
            if len(parts) != 2:
                raise ValueError("between must name two systems")
            a, b = parts
        else:
            raise ValueError("between must be [a, b] or 'a,b'")
        return (str(a).strip(), str(b).strip())

    @field_validator("weight", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return None if v is None or v == "" else int(v)


class TopologyRec(BaseModel):
    """Complete topology description: subnets with systems, plus connections."""

    model_config = ConfigDict(extra="ignore")
    subnets: list[SubnetRec] = Field(default_factory=list)
    connections: list[ConnectionRec] = Field(default_factory=list)

    def systems(self) -> list[tuple[SubnetRec, SystemRec]]:
        return [(subnet, system) for subnet in self.subnets for system in subnet.systems]
