import unittest

from async_upnp_client.exceptions import UpnpActionError, UpnpConnectionError

from fakes import FakeAction, FakeService, mapping_reply
from portmapping.soap import ActionFault, ActionTransportError, UpnpServiceTransport

SERVICE_TYPE = "urn:schemas-upnp-org:service:WANIPConnection:1"
SERVICE_ID = "urn:upnp-org:serviceId:WANIPConn1"


def make_transport(action):
    service = FakeService(SERVICE_TYPE, SERVICE_ID, {"GetGenericPortMappingEntry": action})
    return UpnpServiceTransport(service)


class TestActionFault(unittest.TestCase):
    def test_array_index_invalid(self):
        self.assertTrue(ActionFault("GetGenericPortMappingEntry", 713, None).is_array_index_invalid)
        self.assertTrue(ActionFault("GetGenericPortMappingEntry", "713", "").is_array_index_invalid)
        self.assertTrue(ActionFault("GetGenericPortMappingEntry", None, "SpecifiedArrayIndexInvalid").is_array_index_invalid)
        self.assertFalse(ActionFault("GetGenericPortMappingEntry", 402, "Invalid Args").is_array_index_invalid)

    def test_message(self):
        fault = ActionFault("GetGenericPortMappingEntry", 713, "SpecifiedArrayIndexInvalid")
        self.assertIn("713", str(fault))
        self.assertIn("SpecifiedArrayIndexInvalid", str(fault))


class TestUpnpServiceTransport(unittest.IsolatedAsyncioTestCase):
    async def test_returns_out_arguments(self):
        action = FakeAction(result=mapping_reply(0))
        reply = await make_transport(action).perform_action("GetGenericPortMappingEntry", {'NewPortMappingIndex': 0})
        self.assertEqual(reply['NewExternalPort'], 10000)
        self.assertEqual(action.calls, [{'NewPortMappingIndex': 0}])

    async def test_upnp_error_becomes_fault(self):
        action = FakeAction(error=UpnpActionError(error_code=713, error_desc="SpecifiedArrayIndexInvalid"))
        with self.assertRaises(ActionFault) as ctx:
            await make_transport(action).perform_action("GetGenericPortMappingEntry", {'NewPortMappingIndex': 9})
        self.assertEqual(ctx.exception.error_code, 713)
        self.assertEqual(ctx.exception.error_description, "SpecifiedArrayIndexInvalid")
        self.assertTrue(ctx.exception.is_array_index_invalid)

    async def test_communication_error(self):
        action = FakeAction(error=UpnpConnectionError("connection refused"))
        with self.assertRaises(ActionTransportError):
            await make_transport(action).perform_action("GetGenericPortMappingEntry", {'NewPortMappingIndex': 0})

    async def test_unknown_action(self):
        with self.assertRaises(ActionTransportError):
            await make_transport(FakeAction()).perform_action("DeletePortMapping", {})


if __name__ == '__main__':
    unittest.main()
