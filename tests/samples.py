"""
Sample documents shared by the test suite.

Small but structurally faithful copies of the NIST 800-53 controls feed, the
DISA CCI list, an XCCDF benchmark and a STIG Viewer checklist.
"""

import io
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Tuple

STIG_TITLE = "Test Server Security Technical Implementation Guide"
STIG_VERSION = 2
STIG_RELEASE = "Release: 3 Benchmark Date: 24 Jan 2025"
BENCHMARK_ID = "Test_Server_STIG"

NIST_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<controls:controls xmlns:controls="http://scap.nist.gov/schema/sp800-53/feed/2.0"
                   xmlns="http://scap.nist.gov/schema/sp800-53/2.0">
  <controls:control>
    <family>ACCESS CONTROL</family>
    <number>AC-1</number>
    <title>ACCESS CONTROL POLICY AND PROCEDURES</title>
    <statement>
      <description>The organization:</description>
    </statement>
  </controls:control>
  <controls:control>
    <family>ACCESS CONTROL</family>
    <number>AC-2</number>
    <title>ACCOUNT MANAGEMENT</title>
    <statement>
      <description>The organization manages information system accounts.</description>
    </statement>
    <control-enhancements>
      <control-enhancement>
        <number>AC-2 (1)</number>
        <title>AUTOMATED SYSTEM ACCOUNT MANAGEMENT</title>
        <statement>
          <description>Employ automated mechanisms to support account management.</description>
        </statement>
      </control-enhancement>
    </control-enhancements>
  </controls:control>
  <controls:control>
    <family>CONFIGURATION MANAGEMENT</family>
    <number>CM-6</number>
    <title>CONFIGURATION SETTINGS</title>
    <statement>
      <description>The organization establishes configuration settings.</description>
    </statement>
  </controls:control>
</controls:controls>
"""

CCI_LIST = b"""<?xml version="1.0" encoding="UTF-8"?>
<cci_list xmlns="http://iase.disa.mil/cci">
  <metadata>
    <version>2025-01-01</version>
  </metadata>
  <cci_items>
    <cci_item id="CCI-000001">
      <status>draft</status>
      <definition>Develop an access control policy.</definition>
      <type>policy</type>
      <references>
        <reference creator="NIST" title="NIST SP 800-53" version="3" index="AC-1 a" />
        <reference creator="NIST" title="NIST SP 800-53 Revision 4" version="4" index="AC-1 a 1" />
      </references>
    </cci_item>
    <cci_item id="CCI-000015">
      <definition>Employ automated mechanisms to support account management.</definition>
      <references>
        <reference creator="NIST" title="NIST SP 800-53 Revision 4" version="4" index="AC-2 (1)" />
      </references>
    </cci_item>
    <cci_item id="CCI-000366">
      <definition>Implement the security configuration settings.</definition>
      <references>
        <reference creator="NIST" title="NIST SP 800-53 Revision 4" version="4" index="CM-6 b" />
      </references>
    </cci_item>
    <cci_item id="CCI-009999">
      <definition>Only mapped to revision 5.</definition>
      <references>
        <reference creator="NIST" title="NIST SP 800-53 Revision 5" version="5" index="AC-99" />
      </references>
    </cci_item>
  </cci_items>
</cci_list>
"""

XCCDF = f"""<?xml version="1.0" encoding="UTF-8"?>
<Benchmark xmlns="http://checklists.nist.gov/xccdf/1.1" id="{BENCHMARK_ID}" xml:lang="en">
  <status date="2025-01-24">accepted</status>
  <title>{STIG_TITLE}</title>
  <description>Benchmark used by the test suite.</description>
  <plain-text id="release-info">{STIG_RELEASE}</plain-text>
  <version>{STIG_VERSION}</version>
  <Group id="V-100001">
    <title>SRG-OS-000001-GPOS-00001</title>
    <Rule id="SV-100001r1_rule" weight="10.0" severity="high">
      <version>TS-00-000001</version>
      <title>The server must automatically manage accounts.</title>
      <description>&lt;VulnDiscussion&gt;Unmanaged accounts can be abused.&lt;/VulnDiscussion&gt;&lt;FalsePositives&gt;&lt;/FalsePositives&gt;&lt;Documentable&gt;false&lt;/Documentable&gt;&lt;Responsibility&gt;System Administrator&lt;/Responsibility&gt;&lt;IAControls&gt;&lt;/IAControls&gt;</description>
      <ident system="http://cyber.mil/cci">CCI-000015</ident>
      <fixtext fixref="F-100001r1_fix">Enable automated account management.</fixtext>
      <check system="C-100001r1_chk">
        <check-content-ref name="M" href="Test_Server_STIG.xml" />
        <check-content>Verify accounts are managed automatically.</check-content>
      </check>
    </Rule>
  </Group>
  <Group id="V-100002">
    <title>SRG-OS-000002-GPOS-00002</title>
    <Rule id="SV-100002r2_rule" weight="10.0" severity="medium">
      <version>TS-00-000002</version>
      <title>The server must use the approved configuration.</title>
      <description>&lt;VulnDiscussion&gt;Settings drift when a value is &lt; the baseline.&lt;/VulnDiscussion&gt;&lt;Documentable&gt;true&lt;/Documentable&gt;&lt;Mitigations&gt;None&lt;/Mitigations&gt;</description>
      <ident system="http://cyber.mil/legacy">V-9999</ident>
      <ident system="http://cyber.mil/cci">CCI-000366</ident>
      <fixtext fixref="F-100002r2_fix">Apply the baseline.</fixtext>
      <check system="C-100002r2_chk">
        <check-content-ref name="M" href="Test_Server_STIG.xml" />
        <check-content>Compare settings against the baseline.</check-content>
      </check>
    </Rule>
  </Group>
  <Group id="V-100003">
    <title>SRG-OS-000003-GPOS-00003</title>
    <Rule id="SV-100003r1_rule" weight="10.0" severity="low">
      <version>TS-00-000003</version>
      <title>The server must display a banner.</title>
      <description>&lt;VulnDiscussion&gt;Banners inform users.&lt;/VulnDiscussion&gt;&lt;Documentable&gt;false&lt;/Documentable&gt;</description>
      <ident system="http://cyber.mil/cci">CCI-001234</ident>
      <fixtext fixref="F-100003r1_fix">Configure the banner.</fixtext>
      <check system="C-100003r1_chk">
        <check-content-ref name="M" href="Test_Server_STIG.xml" />
        <check-content>Log on and look for the banner.</check-content>
      </check>
    </Rule>
  </Group>
</Benchmark>
"""

RULES = ("SV-100001r1_rule", "SV-100002r2_rule", "SV-100003r1_rule")


def zip_bytes(members: Iterable[Tuple[str, bytes]]) -> bytes:
    """In-memory zip archive of ``(name, content)`` members."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in members:
            archive.writestr(name, content)
    return buffer.getvalue()


def cci_zip() -> bytes:
    return zip_bytes([("U_CCI_List.xml", CCI_LIST), ("U_CCI_List.xsd", b"<schema/>")])


def write_stig_zip(directory: Path, name: str = "U_Test_Server_V2R3_STIG.zip") -> Path:
    """STIG library layout: the benchmark zip sits inside an outer zip."""
    inner = zip_bytes(
        [
            ("U_Test_Server_V2R3_Manual_STIG/U_Test_Server_STIG_V2R3_Manual-xccdf.xml", XCCDF.encode("utf-8")),
            ("U_Test_Server_V2R3_Manual_STIG/U_Test_Server_STIG_V2R3_Manual_Readme.txt", b"readme"),
        ]
    )
    path = Path(directory) / name
    path.write_bytes(zip_bytes([("U_Test_Server_V2R3_Manual_STIG.zip", inner)]))
    return path


def write_ckl(
    path: Path,
    host: str = "WEB01",
    results: Iterable[Tuple[str, str, str, str]] = (),
    title: str = STIG_TITLE,
    version: int = STIG_VERSION,
    release: str = STIG_RELEASE,
) -> Path:
    """Write a checklist; ``results`` holds ``(vuln, rule, status, details)``."""
    root = ET.Element("CHECKLIST")
    asset = ET.SubElement(root, "ASSET")
    for tag, text in (
        ("ROLE", "None"),
        ("ASSET_TYPE", "Computing"),
        ("MARKING", "CUI"),
        ("HOST_NAME", host),
        ("HOST_IP", "10.0.0.5"),
        ("HOST_MAC", "00-11-22-33-44-55"),
        ("HOST_FQDN", f"{host.lower()}.example.mil"),
        ("TARGET_COMMENT", ""),
        ("TECH_AREA", "Web Review"),
        ("TARGET_KEY", "4096"),
        ("WEB_OR_DATABASE", "false"),
        ("WEB_DB_SITE", ""),
        ("WEB_DB_INSTANCE", ""),
    ):
        ET.SubElement(asset, tag).text = text

    istig = ET.SubElement(ET.SubElement(root, "STIGS"), "iSTIG")
    info = ET.SubElement(istig, "STIG_INFO")
    for name, value in (("version", str(version)), ("releaseinfo", release), ("title", title)):
        si = ET.SubElement(info, "SI_DATA")
        ET.SubElement(si, "SID_NAME").text = name
        ET.SubElement(si, "SID_DATA").text = value

    for vuln_num, rule, status, details in results:
        vuln = ET.SubElement(istig, "VULN")
        for attr, value in (
            ("Vuln_Num", vuln_num),
            ("Severity", "medium"),
            ("Group_Title", "SRG"),
            ("Rule_ID", rule),
            ("Rule_Ver", "TS-00"),
            ("Rule_Title", "Title"),
            ("Vuln_Discuss", "Discussion"),
            ("Check_Content", "Check"),
            ("Fix_Text", "Fix"),
        ):
            sd = ET.SubElement(vuln, "STIG_DATA")
            ET.SubElement(sd, "VULN_ATTRIBUTE").text = attr
            ET.SubElement(sd, "ATTRIBUTE_DATA").text = value
        ET.SubElement(vuln, "STATUS").text = status
        ET.SubElement(vuln, "FINDING_DETAILS").text = details
        ET.SubElement(vuln, "COMMENTS").text = "reviewed"
        ET.SubElement(vuln, "SEVERITY_OVERRIDE").text = ""
        ET.SubElement(vuln, "SEVERITY_JUSTIFICATION").text = ""

    ET.ElementTree(root).write(str(path), encoding="utf-8", xml_declaration=True)
    return Path(path)
