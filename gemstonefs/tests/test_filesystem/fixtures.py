"""Canned answers of a session with one dictionary, two classes and a few methods."""

SYMBOL_LIST = (
    '{"list":['
    '{"oop":1,"name":"UserGlobals","size":2},'
    '{"oop":2,"name":"Globals","size":100}'
    "]}"
)

CLASSES = '{"list":[{"key":"Bar","oop":11},{"key":"Foo","oop":10}]}'

SELECTORS = (
    '{"list":['
    '{"key":"+","oop":102},'
    '{"key":"at:put:","oop":103},'
    '{"key":"foo","oop":100},'
    '{"key":"foo:","oop":101}'
    "]}"
)

FILEOUT = """! ------------------- Class definition for Foo
expectvalue /Class
doit
Object subclass: 'Foo'
  instVarNames: #( value)
  classVars: #()
  classInstVars: #()
  poolDictionaries: #()
  inDictionary: UserGlobals
  options: #()
%
! ------------------- Remove existing behavior from Foo
removeallmethods Foo
removeallclassmethods Foo
! ------------------- Class methods for Foo
set compile_env: 0
category: 'instance creation'
classmethod: Foo
foo
    ^self new
%
! ------------------- Instance methods for Foo
set compile_env: 0
category: 'accessing'
method: Foo
foo: aValue
    value := aValue
%
set compile_env: 0
category: 'accessing'
method: Foo
foo
    ^value
%
category: 'arithmetic'
method: Foo
+ other
    ^value + other value
%
category: 'it''s complicated'
method: Foo
at: index
  put: anObject
    ^super at: index put: anObject
%
"""


def populate(session):
    """Load the canned answers into a FakeSession."""
    session.symbol_list = SYMBOL_LIST
    session.responses[("classesIn:", 1)] = CLASSES
    session.responses[("classesIn:", 2)] = '{"list":[]}'
    session.responses[("selectorsIn:", 10)] = SELECTORS
    session.responses[("selectorsIn:", 11)] = '{"list":[]}'
    session.responses[("fileOutClass:", 10)] = FILEOUT
    session.responses[("allClassNames", None)] = '["Bar","Foo"]'

    return session
