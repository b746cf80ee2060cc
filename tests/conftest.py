"""Shared pytest fixtures: process-definition samples written to tmp_path."""

from pathlib import Path

import pytest

VALID_CAI_XML = """<?xml version="1.0" encoding="UTF-8"?>
<process xmlns="http://informatica.com/iics" name="CustomerDataSync" type="CAI" version="1.0">
  <metadata>
    <description>Synchronizes customer data from API to database</description>
    <author>John Doe</author>
    <created>2025-01-15</created>
    <modified>2025-02-01</modified>
  </metadata>
  <connections>
    <connection id="conn1" type="REST">
      <name>Customer API</name>
      <url>https://api.example.com/customers</url>
      <authentication type="OAuth2"/>
    </connection>
    <connection id="conn2" type="Database">
      <name>Customer Database</name>
      <host>db.example.com</host>
      <port>5432</port>
      <database>crm</database>
      <authentication type="Password"/>
    </connection>
  </connections>
  <transformations>
    <transformation id="trans1" type="Expression">
      <name>FormatCustomerData</name>
      <description>Formats customer names</description>
      <expression>CONCAT(firstName, ' ', lastName)</expression>
      <inputFields>
        <field name="firstName" type="string" required="true"/>
        <field name="lastName" type="string" required="true"/>
      </inputFields>
      <outputFields>
        <field name="fullName" type="string" required="false"/>
      </outputFields>
    </transformation>
    <transformation id="trans2" type="Filter">
      <name>ActiveCustomers</name>
      <description>Keeps active customers only</description>
      <condition>status = 'active'</condition>
    </transformation>
  </transformations>
  <openapi>
    <endpoint path="/customers" method="GET">
      <operationId>getCustomers</operationId>
      <summary>List customers</summary>
      <connectionRef>conn1</connectionRef>
      <parameters>
        <parameter name="status" in="query" type="string" required="false"/>
        <parameter name="limit" in="query" type="integer" required="false" default="50"/>
      </parameters>
      <responses>
        <response code="200">
          <description>Customer list</description>
          <schema type="array" items="Customer"/>
        </response>
      </responses>
      <tags>
        <tag>customers</tag>
        <tag>data-sync</tag>
      </tags>
    </endpoint>
  </openapi>
  <dataFlow>
    <source>
      <connectionRef>conn1</connectionRef>
      <entity>Customer</entity>
    </source>
    <transformationRef>trans1</transformationRef>
    <transformationRef>trans2</transformationRef>
    <target>
      <connectionRef>conn2</connectionRef>
      <entity>CustomerTable</entity>
    </target>
  </dataFlow>
</process>
"""

VALID_CDI_XML = """<?xml version="1.0" encoding="UTF-8"?>
<process name="OrderLoad" type="CDI">
  <metadata>
    <description>Loads daily orders into the warehouse</description>
  </metadata>
  <connections>
    <connection id="src" type="File">
      <name>Orders CSV</name>
    </connection>
    <connection id="dwh" type="Database">
      <name>Warehouse</name>
      <host>dwh.internal</host>
      <database>sales</database>
    </connection>
  </connections>
  <transformations>
    <transformation id="agg" type="Aggregator">
      <name>OrderTotals</name>
      <description>Sums order amounts per customer</description>
    </transformation>
  </transformations>
  <dataFlow>
    <source>
      <connectionRef>src</connectionRef>
      <entity>orders.csv</entity>
    </source>
    <transformationRef>agg</transformationRef>
    <target>
      <connectionRef>dwh</connectionRef>
      <entity>ORDER_TOTALS</entity>
    </target>
  </dataFlow>
</process>
"""

MALFORMED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<process name="Broken" type="CAI">
  <metadata>
</process>
"""

DUPLICATE_ID_XML = """<process name="DuplicateIds" type="CDI">
  <metadata><description>Two connections share an id</description></metadata>
  <connections>
    <connection id="conn1" type="File"><name>First</name></connection>
    <connection id="conn1" type="File"><name>Second</name></connection>
  </connections>
  <dataFlow>
    <source><connectionRef>conn1</connectionRef><entity>in</entity></source>
    <target><connectionRef>conn1</connectionRef><entity>out</entity></target>
  </dataFlow>
</process>
"""

BROKEN_REFERENCE_XML = """<process name="BrokenRefs" type="CDI">
  <metadata><description>References point nowhere</description></metadata>
  <connections>
    <connection id="conn1" type="File"><name>Input</name></connection>
  </connections>
  <transformations>
    <transformation id="trans1" type="Filter">
      <name>Keep</name><description>Keeps rows</description>
    </transformation>
  </transformations>
  <dataFlow>
    <source><connectionRef>conn1</connectionRef><entity>in</entity></source>
    <transformationRef>trans9</transformationRef>
    <target><connectionRef>conn9</connectionRef><entity>out</entity></target>
  </dataFlow>
</process>
"""

NESTING_DEPTH = 3000

DEEPLY_NESTED_XML = (
    '<process name="DeepNesting" type="CDI"><metadata/>'
    + "<x>" * NESTING_DEPTH
    + "</x>" * NESTING_DEPTH
    + "</process>"
)


def write_xml(directory: Path, name: str, content: str) -> Path:
    """Write an XML sample and return its path."""
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def valid_cai_file(tmp_path):
    return write_xml(tmp_path, "customer-sync.xml", VALID_CAI_XML)


@pytest.fixture
def valid_cdi_file(tmp_path):
    return write_xml(tmp_path, "order-load.xml", VALID_CDI_XML)


@pytest.fixture
def malformed_file(tmp_path):
    return write_xml(tmp_path, "broken.xml", MALFORMED_XML)


@pytest.fixture
def duplicate_id_file(tmp_path):
    return write_xml(tmp_path, "duplicate-ids.xml", DUPLICATE_ID_XML)


@pytest.fixture
def broken_reference_file(tmp_path):
    return write_xml(tmp_path, "broken-refs.xml", BROKEN_REFERENCE_XML)


@pytest.fixture
def write_sample(tmp_path):
    """Factory writing arbitrary XML content into tmp_path."""
    def _write(content: str, name: str = "process.xml") -> Path:
        return write_xml(tmp_path, name, content)
    return _write


@pytest.fixture
def valid_cai_xml():
    return VALID_CAI_XML


@pytest.fixture
def valid_cdi_xml():
    return VALID_CDI_XML


@pytest.fixture
def duplicate_id_xml():
    return DUPLICATE_ID_XML


@pytest.fixture
def broken_reference_xml():
    return BROKEN_REFERENCE_XML


@pytest.fixture
def deeply_nested_file(tmp_path):
    return write_xml(tmp_path, "deep.xml", DEEPLY_NESTED_XML)
