# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Datatype tags for the binary body of track files

The ``datatype`` header field picks the width and byte order of every value
in the body.  Tags are resolved with a :class:`Recoder`:

>>> datatype_codes.label['float32be']
'Float32BE'
>>> datatype_codes.dtype['Float64LE'].str
'<f8'
"""

import sys

import numpy as np

from .errors import HeaderError

sys_is_le = sys.byteorder == 'little'
native_code = sys_is_le and '<' or '>'


class Recoder:
    """class to return canonical code(s) from code or aliases

    >>> codes = ((1, 'label1', 'one', 'first'), (2, 'label2', 'two'))
    >>> recodes = Recoder(codes, fields=('code', 'label'))
    >>> recodes.code['first']
    1
    >>> recodes.label[2]
    'label2'
    >>> 'two' in recodes
    True
    """

    def __init__(self, codes, fields=('code',)):
        """Create recoder object

        Parameters
        ----------
        codes : sequence of sequences
            Each sequence defines values (codes) that are equivalent
        fields : {('code',) string sequence}, optional
            names by which elements in sequences can be accessed
        """
        self.fields = tuple(fields)
        self.field1 = {}  # a placeholder for the check below
        for name in fields:
            if name in self.__dict__:
                raise KeyError(f'Input name {name} already in object dict')
            self.__dict__[name] = {}
        self.field1 = self.__dict__[fields[0]]
        self.add_codes(codes)

    def add_codes(self, code_syn_seqs):
        """Add codes to object

        After this call, if ``self.fields == ['field1', 'field2']``, then
        ``self.field1[S[n]] == S[0]`` and ``self.field2[S[n]] == S[1]`` for
        every sequence ``S`` in `code_syn_seqs` and every ``n``.
        """
        for code_syns in code_syn_seqs:
            for alias in code_syns:
                for field_ind, field_name in enumerate(self.fields):
                    self.__dict__[field_name][alias] = code_syns[field_ind]

    def __contains__(self, key):
        try:
            self.field1[key]
        except (KeyError, TypeError):
            return False
        return True

    def value_set(self, name=None):
        """Return set of possible returned values for column

        By default, the column is the first column.
        """
        d = self.field1 if name is None else self.__dict__[name]
        return set(d.values())


_dtdefs = (  # label, dtype, aliases
    ('Float32LE', np.dtype('<f4'), '<f4', 'float32le'),
    ('Float32BE', np.dtype('>f4'), '>f4', 'float32be'),
    ('Float64LE', np.dtype('<f8'), '<f8', 'float64le'),
    ('Float64BE', np.dtype('>f8'), '>f8', 'float64be'),
)

datatype_codes = Recoder(_dtdefs, fields=('label', 'dtype'))

# Unsuffixed tags mean native byte order
datatype_codes.add_codes(
    (
        ('Float32' + ('LE' if sys_is_le else 'BE'), np.dtype(native_code + 'f4'),
         'Float32', 'float32'),
        ('Float64' + ('LE' if sys_is_le else 'BE'), np.dtype(native_code + 'f8'),
         'Float64', 'float64'),
    )
)


def get_datatype(spec):
    """Return canonical ``(label, dtype)`` pair for datatype `spec`

    Parameters
    ----------
    spec : str or numpy dtype specifier
        Header tag such as ``'Float32LE'``, a case-insensitive variant of it,
        or anything ``np.dtype`` accepts for a 32 or 64 bit float.

    Returns
    -------
    label : str
        Canonical header tag.
    dtype : numpy dtype
        dtype with explicit byte order.

    Raises
    ------
    HeaderError
        If `spec` is not one of the supported float datatypes.

    Examples
    --------
    >>> get_datatype('float64be')
    ('Float64BE', dtype('>f8'))
    """
    key = spec
    if isinstance(spec, str):
        if spec not in datatype_codes:
            key = spec.lower()
    else:
        try:
            # .str always carries an explicit byte order
            key = np.dtype(spec).str
        except TypeError:
            key = None
    if key not in datatype_codes:
        raise HeaderError(
            f"Unsupported datatype '{spec}'; expecting one of "
            f"{', '.join(sorted(datatype_codes.value_set()))}"
        )
    return datatype_codes.label[key], datatype_codes.dtype[key]
