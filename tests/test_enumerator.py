import unittest

from fakes import ScriptedActionTransport, mapping_reply
from portmapping.enumerator import PortMappingEnumerator, PortMappingError, fetch_entry, get_entry_at_index
from portmapping.models import GatewayConnection, PortMappingEntry, PortMappingRequest, ResultKind, marshal_ui2
from portmapping.soap import ActionFault, ActionTransportError

SERVICE_TYPE = "urn:schemas-upnp-org:service:WANIPConnection:1"


def make_connection(transport):
    return GatewayConnection(
        friendly_name="Home Router",
        service_type=SERVICE_TYPE,
        service_id="urn:upnp-org:serviceId:WANIPConn1",
        control_url="http://10.0.0.1:5000/ctl/IPConn",
        transport=transport,
    )


async def collect(enumerator, connection):
    return [entry async for entry in enumerator.iter_entries(connection)]


class TestMarshaling(unittest.TestCase):
    def test_same_index_same_payload(self):
        self.assertEqual(PortMappingRequest(7).to_arguments(), PortMappingRequest(7).to_arguments())
        self.assertEqual(PortMappingRequest(7).to_arguments(), {'NewPortMappingIndex': 7})

    def test_ui2_range(self):
        self.assertEqual(marshal_ui2(0), 0)
        self.assertEqual(marshal_ui2(65535), 65535)
        for value in [-1, 65536, True, 1.0, "3"]:
            with self.assertRaises(ValueError):
                marshal_ui2(value)

    def test_request_rejects_out_of_range_index(self):
        with self.assertRaises(ValueError):
            PortMappingRequest(70000)


class TestPortMappingEntry(unittest.TestCase):
    def test_from_reply_keeps_values(self):
        entry = PortMappingEntry.from_reply(3, mapping_reply(3))
        self.assertEqual(entry.index, 3)
        self.assertEqual(entry.remote_host, '')
        self.assertEqual(entry.external_port, 10003)
        self.assertEqual(entry.protocol, 'TCP')
        self.assertEqual(entry.internal_port, 25)
        self.assertEqual(entry.internal_client, '192.168.1.13')
        self.assertIs(entry.enabled, True)
        self.assertEqual(entry.description, 'mapping 3')
        self.assertEqual(entry.lease_duration, 0)

    def test_missing_fields_are_none(self):
        entry = PortMappingEntry.from_reply(0, {'NewProtocol': 'UDP'})
        self.assertEqual(entry.protocol, 'UDP')
        self.assertIsNone(entry.external_port)

    def test_str(self):
        entry = PortMappingEntry.from_reply(0, mapping_reply(0))
        self.assertEqual(str(entry), "#0 TCP *:10000 -> 192.168.1.10:22 (enabled, lease=0, desc='mapping 0')")


class TestGetEntryAtIndex(unittest.IsolatedAsyncioTestCase):
    async def test_issues_single_action(self):
        transport = ScriptedActionTransport(5)
        entry = await get_entry_at_index(make_connection(transport), 2)
        self.assertEqual(entry.external_port, 10002)
        self.assertEqual(transport.calls, [("GetGenericPortMappingEntry", {'NewPortMappingIndex': 2})])

    async def test_end_of_table_is_an_error(self):
        transport = ScriptedActionTransport(0)
        with self.assertRaises(ActionFault):
            await get_entry_at_index(make_connection(transport), 0)

    async def test_fetch_entry_classifies(self):
        connection = make_connection(ScriptedActionTransport(1))
        self.assertIs((await fetch_entry(connection, 0)).kind, ResultKind.ENTRY)
        self.assertIs((await fetch_entry(connection, 1)).kind, ResultKind.END_OF_TABLE)

        faulty = make_connection(ScriptedActionTransport(0, ActionFault("GetGenericPortMappingEntry", 501, "ActionFailed")))
        result = await fetch_entry(faulty, 0)
        self.assertIs(result.kind, ResultKind.FAULT)
        self.assertEqual(result.error.error_code, 501)

        broken = make_connection(ScriptedActionTransport(0, ActionTransportError("connection reset")))
        self.assertIs((await fetch_entry(broken, 0)).kind, ResultKind.FAULT)

    async def test_end_of_table_by_description(self):
        fault = ActionFault("GetGenericPortMappingEntry", None, "SpecifiedArrayIndexInvalid")
        result = await fetch_entry(make_connection(ScriptedActionTransport(0, fault)), 0)
        self.assertIs(result.kind, ResultKind.END_OF_TABLE)


class TestPortMappingEnumerator(unittest.IsolatedAsyncioTestCase):
    async def test_yields_entries_in_order_until_end_of_table(self):
        transport = ScriptedActionTransport(4)
        enumerator = PortMappingEnumerator()

        entries = await collect(enumerator, make_connection(transport))

        self.assertEqual([e.index for e in entries], [0, 1, 2, 3])
        self.assertEqual([c[1]['NewPortMappingIndex'] for c in transport.calls], [0, 1, 2, 3, 4])
        self.assertIs(enumerator.last_result.kind, ResultKind.END_OF_TABLE)

    async def test_empty_table(self):
        entries = await collect(PortMappingEnumerator(), make_connection(ScriptedActionTransport(0)))
        self.assertEqual(entries, [])

    async def test_stops_at_max_entries(self):
        transport = ScriptedActionTransport(100)
        entries = await collect(PortMappingEnumerator(), make_connection(transport))
        self.assertEqual(len(entries), 50)
        self.assertEqual(len(transport.calls), 50)

        transport = ScriptedActionTransport(100)
        entries = await collect(PortMappingEnumerator({'max_entries': 3}), make_connection(transport))
        self.assertEqual([e.index for e in entries], [0, 1, 2])

    async def test_unbounded_is_capped_by_ui2(self):
        self.assertEqual(PortMappingEnumerator({'max_entries': None}).index_limit, 65536)
        self.assertEqual(PortMappingEnumerator({'max_entries': 100000}).index_limit, 65536)

    async def test_fault_raises(self):
        fault = ActionFault("GetGenericPortMappingEntry", 501, "ActionFailed")
        connection = make_connection(ScriptedActionTransport(2, fault))
        entries = []
        with self.assertRaises(PortMappingError) as ctx:
            async for entry in PortMappingEnumerator().iter_entries(connection):
                entries.append(entry)
        self.assertEqual(len(entries), 2)
        self.assertEqual(ctx.exception.index, 2)
        self.assertIs(ctx.exception.cause, fault)

    async def test_fault_as_end_of_table(self):
        connection = make_connection(ScriptedActionTransport(2, ActionTransportError("timeout")))
        enumerator = PortMappingEnumerator({'treat_faults_as_end_of_table': True})
        with self.assertLogs("portmapping.enumerator", level="WARNING"):
            entries = await collect(enumerator, connection)
        self.assertEqual(len(entries), 2)
        self.assertIs(enumerator.last_result.kind, ResultKind.FAULT)


if __name__ == '__main__':
    unittest.main()
