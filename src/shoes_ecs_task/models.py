# src/shoes_ecs_task/models.py
"""
Pydantic models for the two-operation shoes plugin contract.

These mirror the messages a shoes host exchanges with a provider plugin:
AddInstance creates one runner instance, DeleteInstance removes one.
"""

from pydantic import BaseModel, Field

# Fixed instance kind reported for every task this backend launches
SHOES_TYPE = "ecs-task-fargate"


class AddInstanceRequest(BaseModel):
    """Request to create one runner instance."""

    runner_name: str = Field(default="", description="Name the host assigned to the runner")
    setup_script: str = Field(default="", description="Bash script that registers and starts the runner")
    labels: list[str] = Field(default_factory=list, description="Runner labels requested by the host")


class AddInstanceResponse(BaseModel):
    """Handle for a created instance."""

    cloud_id: str = Field(description="ARN of the launched ECS task")
    shoes_type: str = Field(default=SHOES_TYPE, description="Backend instance kind")
    ip_address: str = Field(default="", description="Always empty; task addresses are not discovered")


class DeleteInstanceRequest(BaseModel):
    """Request to delete a previously created instance."""

    cloud_id: str = Field(default="", description="ARN returned by AddInstance (not used)")
    labels: list[str] = Field(default_factory=list)


class DeleteInstanceResponse(BaseModel):
    """Empty acknowledgement."""

    pass
