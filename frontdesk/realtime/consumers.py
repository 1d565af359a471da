import json

from channels.generic.websocket import AsyncWebsocketConsumer

from frontdesk.services.appointments import slots_group


class DoctorSlotsConsumer(AsyncWebsocketConsumer):
    """Pushes ``slots.changed`` events for one doctor to booking screens."""

    async def connect(self):
        self.group = slots_group(self.scope["url_route"]["kwargs"]["doctor_id"])
        await self.channel_layer.group_add(self.group, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.group, self.channel_name)

    async def slots_changed(self, event):
        # event: {"type": "slots.changed", "doctorId": int, "date": "YYYY-MM-DD", "scheduledAt": "..."}
        await self.send(json.dumps(event))
