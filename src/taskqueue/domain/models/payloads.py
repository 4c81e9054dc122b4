from pydantic import BaseModel, Field


class NewMessageTask(BaseModel):
    """Producer request for a new outbound message task."""

    recipient_id: int = Field(ge=0, description="Recipient receiving the message.")
    instance_id: int = Field(ge=0, description="Delivery instance used to send the message.")
    user: str = Field(default="", description="Target user on the delivery instance.")
    subject: str = Field(default="", description="Message subject.")
    body: str = Field(default="", description="Message body.")
    is_priority: bool = Field(default=False, description="Deliver ahead of normal tasks.")
